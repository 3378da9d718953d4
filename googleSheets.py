import os

from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from google.oauth2 import service_account
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from google.auth.transport.requests import Request

from errors import ConfigError, StoreReadFailure, StoreWriteFailure

# --------------------------------------------------------------------------
# SCOPES
# --------------------------------------------------------------------------
SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]


# --------------------------------------------------------------------------
# AUTHENTICATE
# --------------------------------------------------------------------------
def load_credentials(settings):
    """
    Service-account key file when GOOGLE_APPLICATION_CREDENTIALS is set,
    otherwise the cached user token (token.json), running the browser
    consent flow the first time.
    """
    if settings.service_account_file:
        key_file = os.path.abspath(settings.service_account_file)
        if not os.path.isfile(key_file):
            raise ConfigError(f"Service account key file not found: {key_file}")
        return service_account.Credentials.from_service_account_file(key_file, scopes=SCOPES)

    creds = None
    if os.path.exists(settings.token_file):
        creds = Credentials.from_authorized_user_file(settings.token_file, SCOPES)

    if not creds or not creds.valid:
        if creds and creds.expired and creds.refresh_token:
            creds.refresh(Request())
        else:
            if not os.path.exists(settings.client_secrets_file):
                raise ConfigError(
                    "No Google credentials: set GOOGLE_APPLICATION_CREDENTIALS "
                    f"or provide {settings.client_secrets_file}"
                )
            flow = InstalledAppFlow.from_client_secrets_file(settings.client_secrets_file, SCOPES)
            creds = flow.run_local_server(port=0)
        with open(settings.token_file, "w") as token:
            token.write(creds.to_json())
    return creds


def authenticate_sheets(settings):
    creds = load_credentials(settings)
    return build("sheets", "v4", credentials=creds, cache_discovery=False)


# --------------------------------------------------------------------------
# STORE
# --------------------------------------------------------------------------
class SheetStore:
    """Reads, appends and overwrites cell ranges of one spreadsheet."""

    def __init__(self, service, spreadsheet_id):
        self.service = service
        self.spreadsheet_id = spreadsheet_id

    @classmethod
    def from_settings(cls, settings):
        return cls(authenticate_sheets(settings), settings.require_sheet())

    def _values(self):
        return self.service.spreadsheets().values()

    def read(self, region):
        try:
            resp = self._values().get(spreadsheetId=self.spreadsheet_id, range=region).execute()
        except HttpError as e:
            raise StoreReadFailure(f"Could not read {region}: {e}") from e
        return resp.get("values", [])

    def append(self, region, matrix):
        try:
            self._values().append(
                spreadsheetId=self.spreadsheet_id,
                range=region,
                valueInputOption="RAW",
                insertDataOption="INSERT_ROWS",
                body={"values": matrix},
            ).execute()
        except HttpError as e:
            raise StoreWriteFailure(f"Could not append to {region}: {e}") from e

    def overwrite(self, region, matrix):
        """
        Replaces the tab behind `region` with `matrix` in a single update.
        Cells left over from a larger previous table are blanked by padding,
        so a failed write never leaves the tab half cleared.
        """
        tab = region.split("!")[0]
        previous = self.read(tab)
        values = pad_matrix(matrix, len(previous), max((len(r) for r in previous), default=0))
        try:
            self._values().update(
                spreadsheetId=self.spreadsheet_id,
                range=region,
                valueInputOption="RAW",
                body={"values": values},
            ).execute()
        except HttpError as e:
            raise StoreWriteFailure(f"Could not overwrite {region}: {e}") from e


def pad_matrix(matrix, min_rows, min_cols):
    """Right/bottom pads `matrix` with '' up to at least min_rows x min_cols."""
    width = max([min_cols] + [len(r) for r in matrix])
    rows = [list(r) + [""] * (width - len(r)) for r in matrix]
    while len(rows) < min_rows:
        rows.append([""] * width)
    return rows
