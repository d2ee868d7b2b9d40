import atexit

from django.apps import AppConfig


class LogisticsConfig(AppConfig):
    name = "backend.logistics"
    label = "logistics"
    default_auto_field = "django.db.models.BigAutoField"

    def ready(self):
        # One store handle for the process: opened at startup, closed at exit.
        from .store import DjangoStore

        self.store = DjangoStore().open()
        atexit.register(self.store.close)
