# streamlit_gui_autotest.py
# Selenium script that drives the running Streamlit app through a short practice
# (add players, generate and confirm rounds, roll one back) and reports GUI errors.
# Usage: pip install -e .[test]
# Then: streamlit run app.py  (in another shell)
#       python streamlit_gui_autotest.py --players 9 --rounds 6

import argparse
import time

from selenium import webdriver
from selenium.common.exceptions import WebDriverException
from selenium.webdriver.common.by import By
from selenium.webdriver.firefox.service import Service as FirefoxService
from webdriver_manager.firefox import GeckoDriverManager

STREAMLIT_URL = "http://localhost:8501"  # Change if your Streamlit app runs elsewhere
WAIT_TIME = 1.5  # seconds to wait after each click


def find_button(browser, label):
    for btn in browser.find_elements(By.XPATH, f"//button[contains(., '{label}')]"):
        if btn.is_displayed() and btn.is_enabled():
            return btn
    return None


def open_tab(browser, label):
    for tab in browser.find_elements(By.CSS_SELECTOR, '[role="tab"]'):
        if label in tab.text:
            tab.click()
            time.sleep(0.5)
            return True
    return False


def click(browser, label):
    btn = find_button(browser, label)
    if btn is None:
        print(f"Button not available: {label}")
        return False
    print(f"Clicking button: {label}")
    browser.execute_script("arguments[0].scrollIntoView({block: 'center'});", btn)
    time.sleep(0.3)
    try:
        btn.click()
    except WebDriverException as e:
        print(f"Standard click failed for '{label}', trying JS click. Reason: {e}")
        browser.execute_script("arguments[0].click();", btn)
    time.sleep(WAIT_TIME)
    return True


def report_errors(browser, step):
    error_divs = browser.find_elements(By.CSS_SELECTOR, '[data-testid="stException"], [data-testid="stExceptionDetails"]')
    if error_divs:
        print(f"ERROR after '{step}': {error_divs[0].text}")
        return 1
    print(f"No error after '{step}'")
    return 0


def run(url, num_players, num_rounds, headless):
    options = webdriver.FirefoxOptions()
    if headless:
        options.add_argument('--headless')
    browser = webdriver.Firefox(service=FirefoxService(GeckoDriverManager().install()), options=options)
    errors = 0
    try:
        browser.get(url)
        time.sleep(3)  # Wait for app to load

        open_tab(browser, "Players")
        for _ in range(num_players):
            click(browser, "Add Player")
        errors += report_errors(browser, "Add Player")

        open_tab(browser, "Round")
        for rnd in range(1, num_rounds + 1):
            click(browser, "Generate Round")
            errors += report_errors(browser, f"Generate Round {rnd}")
            click(browser, "Confirm Round")
            errors += report_errors(browser, f"Confirm Round {rnd}")

        if click(browser, "Roll Back Last Round"):
            errors += report_errors(browser, "Roll Back Last Round")

        open_tab(browser, "Stats")
        errors += report_errors(browser, "Stats & Export")
    finally:
        print("\nDone. Closing browser.")
        browser.quit()
    return errors


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Click through the practice scheduler GUI and report errors.")
    parser.add_argument("--url", type=str, default=STREAMLIT_URL)
    parser.add_argument("--players", type=int, default=9)
    parser.add_argument("--rounds", type=int, default=6)
    parser.add_argument("--headless", action="store_true")
    cli_args = parser.parse_args()
    failures = run(cli_args.url, cli_args.players, cli_args.rounds, cli_args.headless)
    print(f"{failures} step(s) reported errors")
    raise SystemExit(1 if failures else 0)
