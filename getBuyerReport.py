import os
import time

from selenium import webdriver
from selenium.webdriver.chrome.service import Service
from selenium.webdriver.chrome.options import Options
from selenium.webdriver.support.ui import WebDriverWait
from selenium.webdriver.common.by import By
from selenium.webdriver.support import expected_conditions as EC
from selenium.common.exceptions import TimeoutException, WebDriverException
from webdriver_manager.chrome import ChromeDriverManager

from errors import SourceUnavailable

LOGIN_TIMEOUT = 30
PAGE_TIMEOUT = 10


def launchBrowser(download_dir, headless=True):
    os.makedirs(download_dir, exist_ok=True)

    chrome_options = Options()
    if headless:
        chrome_options.add_argument("--headless=new")
    chrome_options.add_argument("start-maximized")
    chrome_options.add_experimental_option('excludeSwitches', ['enable-logging'])

    prefs = {
        "download.default_directory": os.path.abspath(download_dir),
        "download.prompt_for_download": False,
        "download.directory_upgrade": True,
        "safebrowsing.enabled": True
    }
    chrome_options.add_experimental_option("prefs", prefs)

    return webdriver.Chrome(service=Service(ChromeDriverManager().install()), options=chrome_options)


def monitor_folder_for_new_file(folder_path, before_files, timeout=120, suffix=".csv"):
    """Wait for a finished download (no .crdownload) to show up in the folder."""
    start_time = time.time()
    while time.time() - start_time < timeout:
        current_files = set(os.listdir(folder_path))
        new_files = current_files - before_files
        for file in new_files:
            if file.endswith(suffix):
                return file
        time.sleep(1)
    return None


def wait_for_download_to_finish(file_path, timeout, poll=0.5):
    """
    True once Chrome has dropped its .crdownload partial and the CSV size has
    held still for one poll. False if that has not happened within `timeout`.
    """
    partial_path = file_path + ".crdownload"
    deadline = time.time() + timeout
    last_size = None
    while time.time() < deadline:
        if os.path.exists(file_path) and not os.path.exists(partial_path):
            size = os.path.getsize(file_path)
            if size == last_size:
                return True
            last_size = size
        time.sleep(poll)
    return False


class PortalReportSource:
    """
    Logs into the distributor portal, requests a custom report for a date
    span and returns the downloaded CSV as text.
    """

    def __init__(self, settings, driver_factory=launchBrowser):
        self.settings = settings
        self.driver_factory = driver_factory
        self.driver = None

    def fetch(self, span):
        user, password = self.settings.require_portal_login()
        download_dir = self.settings.download_dir
        try:
            self.driver = self.driver_factory(download_dir, headless=self.settings.headless)
        except WebDriverException as e:
            raise SourceUnavailable(f"Could not start Chrome: {e.msg}") from e

        try:
            self.login(user, password)
            self.open_custom_report()
            self.set_date_range(span.start_text, span.end_text)
            before_files = set(os.listdir(download_dir))
            self.request_export()
            return self.download_latest_csv(download_dir, before_files)
        except TimeoutException as e:
            raise SourceUnavailable(f"Portal did not respond in time: {e.msg}") from e
        except WebDriverException as e:
            raise SourceUnavailable(f"Browser error on the portal: {e.msg}") from e
        finally:
            self.driver.quit()
            self.driver = None

    def login(self, user, password):
        self.driver.get(self.settings.login_url)
        wait = WebDriverWait(self.driver, PAGE_TIMEOUT)
        wait.until(EC.element_to_be_clickable((By.CSS_SELECTOR, "input[type='email']"))).send_keys(user)
        wait.until(EC.element_to_be_clickable((By.CSS_SELECTOR, "input[type='password']"))).send_keys(password)
        wait.until(EC.element_to_be_clickable((By.XPATH, "//button[normalize-space()='Sign in']"))).click()
        try:
            WebDriverWait(self.driver, LOGIN_TIMEOUT).until(
                EC.presence_of_element_located((By.XPATH, "//a[contains(., 'Reports')]"))
            )
        except TimeoutException as e:
            raise SourceUnavailable("Login failed: Reports link never appeared") from e
        print("Logged in to the report portal.")

    def open_custom_report(self):
        wait = WebDriverWait(self.driver, PAGE_TIMEOUT)
        wait.until(EC.element_to_be_clickable((By.XPATH, "//a[contains(., 'Reports')]"))).click()
        tab = wait.until(EC.element_to_be_clickable((By.XPATH, "(//*[@role='tab'][contains(., 'Custom Report')])[1]")))
        tab.click()
        time.sleep(1)

    def set_date_range(self, from_text, to_text):
        # The range picker only reads its label when the export is queued
        self.driver.execute_script(
            "const el = document.querySelector('.reportrange-text');"
            "if (el) el.innerText = `Report dates: ${arguments[0]} - ${arguments[1]}`;",
            from_text, to_text,
        )
        print(f"Set date range: {from_text} to {to_text}")

    def request_export(self):
        wait = WebDriverWait(self.driver, PAGE_TIMEOUT)
        wait.until(EC.element_to_be_clickable(
            (By.XPATH, "//*[@role='tabpanel']//button[contains(., 'Download')]")
        )).click()
        print("Export queued.")
        time.sleep(2)

        # The newest export sits at the top of the history table
        history_button = WebDriverWait(self.driver, self.settings.export_timeout).until(
            EC.element_to_be_clickable((By.XPATH, "(//tr[contains(., '.csv')])[1]//button"))
        )
        history_button.click()

    def download_latest_csv(self, download_dir, before_files):
        downloaded_file = monitor_folder_for_new_file(
            download_dir, before_files, timeout=self.settings.export_timeout
        )
        if not downloaded_file:
            raise SourceUnavailable(
                f"No CSV arrived in {download_dir} within {self.settings.export_timeout}s"
            )
        file_path = os.path.join(download_dir, downloaded_file)
        if not wait_for_download_to_finish(file_path, self.settings.export_timeout):
            raise SourceUnavailable(f"Download {downloaded_file} did not finish writing")

        print(f"New file detected: {downloaded_file}")
        with open(file_path, "r", encoding="utf-8-sig") as f:
            return f.read()
