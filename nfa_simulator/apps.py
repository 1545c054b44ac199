from django.apps import AppConfig


class NfaSimulatorConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'nfa_simulator'
    verbose_name = 'NFA simulator'
