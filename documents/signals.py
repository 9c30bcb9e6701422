from django.core.signals import setting_changed
from django.dispatch import receiver

from .store import reset_store


STORE_SETTINGS = {
    "DATA_DIR",
    "S3_ENDPOINT",
    "S3_REGION",
    "S3_BUCKET",
    "S3_ACCESS_KEY",
    "S3_SECRET_KEY",
    "S3_BACKUP_KEEP",
}


@receiver(setting_changed)
def reset_store_on_settings_change(*, setting, **kwargs):
    if setting in STORE_SETTINGS:
        reset_store()
