import os
from dataclasses import dataclass
from typing import Optional

from dotenv import find_dotenv, load_dotenv

from errors import ConfigError

##############################################################################
# DEFAULTS
##############################################################################
LOGIN_URL = "https://distribteportal.com/auth/login"
RAW_RANGE = "RawData!A:C"
SUMMARY_RANGE = "Summary!A1"
DOWNLOAD_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "files")
EXPORT_TIMEOUT = 120
TOKEN_FILE = "token.json"
CLIENT_SECRETS_FILE = "credentials.json"

TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    sheet_id: Optional[str]
    service_account_file: Optional[str]
    token_file: str
    client_secrets_file: str
    portal_user: Optional[str]
    portal_password: Optional[str]
    login_url: str
    raw_range: str
    summary_range: str
    download_dir: str
    export_timeout: int
    headless: bool
    debug_dir: Optional[str]

    def require_sheet(self):
        if not self.sheet_id:
            raise ConfigError("SHEET_ID is not set")
        return self.sheet_id

    def require_portal_login(self):
        if not self.portal_user or not self.portal_password:
            raise ConfigError("DISTRIBUTE_USER and DISTRIBUTE_PASS must both be set")
        return self.portal_user, self.portal_password


def _int_setting(name, default):
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}")
    if value <= 0:
        raise ConfigError(f"{name} must be positive, got {value}")
    return value


def _summary_range_setting():
    """The summary is rewritten from its tab's top-left cell, so only 'Tab' or 'Tab!A1'."""
    raw = os.getenv("SUMMARY_RANGE", SUMMARY_RANGE).strip()
    tab, _, cell = raw.partition("!")
    if not tab or cell.upper() not in ("", "A1"):
        raise ConfigError(f"SUMMARY_RANGE must be a tab name or start at A1, got {raw!r}")
    return f"{tab}!A1"


def load_settings(env_file=None):
    """
    Reads settings from a .env file (if present) and the process environment.
    Real environment variables win over .env entries.
    """
    load_dotenv(env_file or find_dotenv(usecwd=True))
    return Settings(
        sheet_id=os.getenv("SHEET_ID"),
        service_account_file=os.getenv("GOOGLE_APPLICATION_CREDENTIALS"),
        token_file=os.getenv("GOOGLE_TOKEN_FILE", TOKEN_FILE),
        client_secrets_file=os.getenv("GOOGLE_CLIENT_SECRETS", CLIENT_SECRETS_FILE),
        portal_user=os.getenv("DISTRIBUTE_USER"),
        portal_password=os.getenv("DISTRIBUTE_PASS"),
        login_url=os.getenv("DISTRIBUTE_LOGIN_URL", LOGIN_URL),
        raw_range=os.getenv("RAW_RANGE", RAW_RANGE),
        summary_range=_summary_range_setting(),
        download_dir=os.getenv("DOWNLOAD_DIR", DOWNLOAD_DIR),
        export_timeout=_int_setting("EXPORT_TIMEOUT", EXPORT_TIMEOUT),
        headless=os.getenv("HEADLESS", "true").strip().lower() in TRUE_VALUES,
        debug_dir=os.getenv("DEBUG_DIR") or None,
    )
