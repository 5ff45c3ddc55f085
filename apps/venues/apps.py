from django.apps import AppConfig  # type: ignore


class VenuesConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.venues"
    label = "venues"
    verbose_name = "Venues"
