from django.apps import AppConfig


class ApiSessionsConfig(AppConfig):
    name = "api_sessions"
    verbose_name = "API Sessions"

    def ready(self):
        # run extra user configuration checks
        import api_sessions.checks  # noqa: F401
