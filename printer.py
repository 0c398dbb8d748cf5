import os, subprocess, sys
from typing import Dict, List, Optional, Tuple

import config
from logging_config import get_logger

if sys.platform == 'win32':
    import win32print

logger = get_logger(__name__)


def get_default_printer() -> Optional[str]:
    if sys.platform == 'win32':
        try:
            return win32print.GetDefaultPrinter()
        except Exception as e:
            logger.warning('No default printer: %s', e)
            return None
    rc, out = _run([config.LPSTAT_PATH, '-d'])
    if rc != 0:
        return None
    # "system default destination: Office_Laser"
    for line in out.splitlines():
        if ':' in line and 'default destination' in line:
            name = line.split(':', 1)[1].strip()
            return name or None
    return None


def _list_printers_win32() -> List[Dict]:
    flags = win32print.PRINTER_ENUM_LOCAL | win32print.PRINTER_ENUM_CONNECTIONS
    default = get_default_printer()
    out = []
    # level 1 tuples: (flags, description, name, comment)
    for p in win32print.EnumPrinters(flags):
        out.append({
            'name': p[2],
            'description': p[1],
            'isDefault': p[2] == default,
            'status': None,
        })
    return out


def _list_printers_cups() -> List[Dict]:
    rc, out = _run([config.LPSTAT_PATH, '-p'])
    if rc != 0:
        raise RuntimeError(f'lpstat failed ({rc}): {out.strip()}')
    default = get_default_printer()
    printers = []
    # "printer Office_Laser is idle.  enabled since ..."
    for line in out.splitlines():
        parts = line.split()
        if len(parts) < 3 or parts[0] != 'printer':
            continue
        name = parts[1]
        status = parts[3].rstrip('.') if len(parts) > 3 and parts[2] == 'is' else ' '.join(parts[2:])
        printers.append({
            'name': name,
            'description': name,
            'isDefault': name == default,
            'status': status,
        })
    return printers


def list_printers() -> List[Dict]:
    """
    Printers known to the OS as dicts with name, description, isDefault, status.
    Enumeration failures are logged and give an empty list.
    """
    try:
        if sys.platform == 'win32':
            return _list_printers_win32()
        return _list_printers_cups()
    except Exception as e:
        logger.error('System printer enumeration failed: %s', e)
        return []


def _run(args: List[str], timeout: Optional[float] = None) -> Tuple[int, str]:
    """Run a command and return (exit_code, stdout+stderr). A missing binary is exit code -1."""
    try:
        proc = subprocess.run(args, capture_output=True, text=True, timeout=timeout or config.PRINT_COMMAND_TIMEOUT)
        return proc.returncode, proc.stdout + proc.stderr
    except Exception as e:
        return -1, str(e)


def _call_ghostscript_print(gs_path: str, pdf_path: str, printer_name: str, copies: int = 1, extra_args: List[str] = None) -> Tuple[int, str]:
    """
    Use GhostScript mswinpr2 device to print. Returns (exit_code, stdout+stderr)
    """
    if extra_args is None: extra_args = []
    # Compose the -sOutputFile for mswinpr2: %printer%Printer Name
    output = f"%printer%{printer_name}"
    args = [gs_path, "-dBATCH", "-dNOPAUSE", f"-dNumCopies={copies}", "-sDEVICE=mswinpr2", f"-sOutputFile={output}"] + extra_args + [pdf_path]
    return _run(args)


def _call_lp_print(lp_path: str, pdf_path: str, printer_name: Optional[str], copies: int = 1) -> Tuple[int, str]:
    """Submit to CUPS. Without a printer name lp uses the system default."""
    args = [lp_path, "-n", str(copies)]
    if printer_name:
        args += ["-d", printer_name]
    args.append(pdf_path)
    return _run(args)


def print_pdf(pdf_path: str, printer_name: Optional[str] = None, copies: int = 1) -> dict:
    """
    Send a rendered PDF to a printer.
    Returns {'ok': True, 'printer': ..., 'output': ...} or {'ok': False, 'error': reason, ...};
    device failures are reported, never raised.
    """
    if not os.path.exists(pdf_path):
        return {'ok': False, 'error': f'PDF not found: {pdf_path}'}
    if sys.platform == 'win32':
        printer_name = printer_name or get_default_printer()
        if not printer_name:
            return {'ok': False, 'error': 'No printer selected and no system default printer'}
        rc, out = _call_ghostscript_print(config.GS_PATH, pdf_path, printer_name, copies=copies)
    else:
        rc, out = _call_lp_print(config.LP_PATH, pdf_path, printer_name, copies=copies)
    if rc != 0:
        logger.warning('Print command for %s exited with %s', printer_name or 'default printer', rc)
        return {'ok': False, 'error': out.strip() or f'print command exited with code {rc}', 'code': rc, 'printer': printer_name}
    return {'ok': True, 'printer': printer_name, 'output': out}
