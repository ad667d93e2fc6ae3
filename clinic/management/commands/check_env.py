import os

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

REQUIRED_IN_PROD = ["SECRET_KEY", "ALLOWED_HOSTS"]
DATABASE_VARS = ["POSTGRES_DB", "DB_NAME", "DATABASE_URL"]
RECOMMENDED = ["REDIS_URL", "CORS_ALLOWED_ORIGINS", "JWT_ACCESS_MINUTES", "JWT_REFRESH_DAYS"]


class Command(BaseCommand):
    help = "Report required and recommended settings; fails in prod when required ones are missing."

    def handle(self, *args, **options):
        env = getattr(settings, "ENV", "dev")
        missing = [name for name in REQUIRED_IN_PROD if not os.getenv(name)]
        if not any(os.getenv(name) for name in DATABASE_VARS):
            missing.append("POSTGRES_DB or DATABASE_URL")

        engine = settings.DATABASES["default"]["ENGINE"].rsplit(".", 1)[-1]
        self.stdout.write(f"ENV={env} DEBUG={settings.DEBUG} database={engine}")
        for name in REQUIRED_IN_PROD:
            self.stdout.write(f"  {name}: {'set' if os.getenv(name) else 'MISSING'}")
        for name in RECOMMENDED:
            self.stdout.write(f"  {name}: {'set' if os.getenv(name) else 'not set (default used)'}")
        for name, url in settings.GATEWAY_SERVICES.items():
            self.stdout.write(f"  service {name}: {url}")
        if settings.DOCTOR_ONLY_MODE:
            self.stdout.write(self.style.WARNING("DOCTOR_ONLY_MODE is on; only the doctors service is routed"))

        if missing:
            message = "Missing required settings: " + ", ".join(missing)
            if env == "prod":
                raise CommandError(message)
            self.stdout.write(self.style.WARNING(message))
        else:
            self.stdout.write(self.style.SUCCESS("Environment looks complete."))
