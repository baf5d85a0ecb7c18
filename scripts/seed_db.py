from __future__ import annotations

import importlib

from dotenv import load_dotenv

from timepay.config import get_settings_module
from timepay.database.bootstrap import apply_seed_sql, ensure_default_accounts


def main() -> None:
    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)

    apply_seed_sql(db_config)
    ensure_default_accounts(db_config, admin_email=settings.ADMIN_EMAIL, admin_password=settings.ADMIN_PASSWORD)

    print(
        "OK: Seeded database -> "
        f"{db_config.get('user')}@{db_config.get('host')}:{db_config.get('port', 3306)}/{db_config.get('database')} "
        f"(admin={settings.ADMIN_EMAIL})"
    )


if __name__ == "__main__":
    main()
