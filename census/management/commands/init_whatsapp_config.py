from django.core.management.base import BaseCommand

from census.services.config_docs import WHATSAPP_CONFIG, deep_merge, get_config, merge_config

DEFAULT_WHATSAPP_CONFIG = {
    "enabled": True,
    "status": "disconnected",
    "lastConnected": None,
    "shiftParser": {
        "enabled": True,
        "sourceGroupId": "",
    },
    "handoffNotifications": {
        "enabled": True,
        "targetGroupId": "",
        "autoSendTime": "17:00",
    },
}


class Command(BaseCommand):
    help = "Create the WhatsApp integration settings document, keeping any values already stored."

    def add_arguments(self, parser):
        parser.add_argument("--source-group", default="")
        parser.add_argument("--target-group", default="")

    def handle(self, *args, **opts):
        defaults = deep_merge(DEFAULT_WHATSAPP_CONFIG, {
            "shiftParser": {"sourceGroupId": opts["source_group"]},
            "handoffNotifications": {"targetGroupId": opts["target_group"]},
        })
        # stored values win over defaults
        data = merge_config(WHATSAPP_CONFIG, deep_merge(defaults, get_config(WHATSAPP_CONFIG)))
        self.stdout.write(self.style.SUCCESS(f"whatsapp config: {data}"))
