from django.apps import AppConfig


class CableBillingConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'cable_billing'
    verbose_name = 'Cable Billing'
