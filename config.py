import os, tempfile
from dotenv import load_dotenv

load_dotenv()

# API server binds to loopback only. Override for LAN use.
SERVER_HOST = os.environ.get('PRINT_TRAY_HOST', '127.0.0.1')
SERVER_PORT = int(os.environ.get('PRINT_TRAY_PORT', '19613'))
# Comma separated CORS origins. Empty means allow any origin.
ALLOWED_ORIGINS = [o.strip() for o in os.environ.get('PRINT_TRAY_ALLOWED_ORIGINS', '').split(',') if o.strip()] or ['*']
# Client identifier sent when loading remote URLs
USER_AGENT = os.environ.get('PRINT_TRAY_USER_AGENT', 'PrintTray')
# Id of the <style> element holding the injected @page rule
MARGIN_STYLE_ID = 'print-tray-margins'
# Where preview PDFs are written. They are never cleaned up by the service.
PREVIEW_DIR = os.environ.get('PRINT_TRAY_PREVIEW_DIR', tempfile.gettempdir())
PREVIEW_PREFIX = 'print-tray-preview-'
# Seconds to wait for "document complete". Unset waits forever.
_ready_timeout = os.environ.get('PRINT_TRAY_READY_TIMEOUT', '')
READY_TIMEOUT = float(_ready_timeout) if _ready_timeout else None
HEADLESS = os.environ.get('PRINT_TRAY_HEADLESS', '1') != '0'
# GhostScript executable path (console), used on Windows for device printing.
GS_PATH = os.environ.get('GS_PATH', 'gswin64c.exe')
# CUPS lp, used everywhere else
LP_PATH = os.environ.get('LP_PATH', 'lp')
LPSTAT_PATH = os.environ.get('LPSTAT_PATH', 'lpstat')
# How long (seconds) a print command may run before it is treated as failed
PRINT_COMMAND_TIMEOUT = float(os.environ.get('PRINT_COMMAND_TIMEOUT', '60'))
LOG_LEVEL = os.environ.get('PRINT_TRAY_LOG_LEVEL', 'INFO').upper()
LOG_DIR = os.environ.get('PRINT_TRAY_LOG_DIR', '')
LOG_TO_FILE = os.environ.get('PRINT_TRAY_LOG_TO_FILE', '0') == '1'
