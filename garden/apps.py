from django.apps import AppConfig


class GardenConfig(AppConfig):
    name = "garden"
    verbose_name = "Seed Studio"

    def ready(self):
        # import signals to register them
        from . import signals  # noqa: F401
