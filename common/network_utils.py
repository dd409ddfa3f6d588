# common/network_utils.py
# -*- coding: utf-8 -*-
"""
Network-related utility functions: reachability checks and file downloads.
"""

import logging
import socket
from pathlib import Path
from typing import Optional, Union
from urllib.parse import urlparse

import requests

from devsetup.config_models import AppSettings

from .command_utils import _symbols_for, log_devsetup

module_logger = logging.getLogger(__name__)

DOWNLOAD_TIMEOUT_SECONDS = 120


def host_reachable(
    url: str,
    timeout: float,
    app_settings: Optional[AppSettings] = None,
    current_logger: Optional[logging.Logger] = None,
) -> bool:
    """
    Open (and close) a TCP connection to the host of `url`.

    Returns:
        bool: True if the connection succeeded within `timeout` seconds.
    """
    logger_to_use = current_logger if current_logger else module_logger
    parsed = urlparse(url)
    host = parsed.hostname
    if not host:
        return False
    port = parsed.port or (443 if parsed.scheme == "https" else 80)
    try:
        with socket.create_connection((host, port), timeout=timeout):
            return True
    except OSError as e:
        log_devsetup(
            f"{_symbols_for(app_settings).get('warning', '!')} Cannot reach {host}:{port}: {e}",
            "warning",
            logger_to_use,
            app_settings,
        )
        return False


def download_file(
    url: str,
    download_to_path: Union[str, Path],
    app_settings: Optional[AppSettings] = None,
    current_logger: Optional[logging.Logger] = None,
    timeout: float = DOWNLOAD_TIMEOUT_SECONDS,
) -> bool:
    """
    Download `url` to `download_to_path`, streaming in chunks.

    Args:
        url: The file to fetch.
        download_to_path: Destination file; parent directories are created.
        app_settings: Application settings for log symbols.
        current_logger: Logger to use. Defaults to the module logger.
        timeout: Connect/read timeout in seconds.

    Returns:
        True if the download was successful, False otherwise.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = _symbols_for(app_settings)
    download_path = Path(download_to_path)
    log_devsetup(
        f"{symbols.get('package', '📦')} Downloading {url}",
        "info",
        logger_to_use,
        app_settings,
    )
    response: Optional[requests.Response] = None

    try:
        download_path.parent.mkdir(parents=True, exist_ok=True)
        response = requests.get(url, stream=True, timeout=timeout)
        response.raise_for_status()

        with open(download_path, "wb") as f:
            for chunk in response.iter_content(chunk_size=8192):
                if chunk:
                    f.write(chunk)
        log_devsetup(
            f"{symbols.get('success', '✅')} Downloaded to {download_path}",
            "success",
            logger_to_use,
            app_settings,
        )
        return True
    except requests.exceptions.HTTPError as http_err:
        status_code = (
            response.status_code if response is not None else "Unknown"
        )
        log_devsetup(
            f"HTTP error occurred: {http_err} - Status code: {status_code}",
            "error",
            logger_to_use,
            app_settings,
        )
    except requests.exceptions.ConnectionError as conn_err:
        log_devsetup(
            f"Connection error occurred: {conn_err}",
            "error",
            logger_to_use,
            app_settings,
        )
    except requests.exceptions.Timeout as timeout_err:
        log_devsetup(
            f"Timeout error occurred: {timeout_err}",
            "error",
            logger_to_use,
            app_settings,
        )
    except requests.exceptions.RequestException as req_err:
        log_devsetup(
            f"An unexpected error occurred during download: {req_err}",
            "error",
            logger_to_use,
            app_settings,
        )
    except OSError as io_err:
        log_devsetup(
            f"File I/O error when saving download: {io_err}",
            "error",
            logger_to_use,
            app_settings,
        )
    finally:
        if response is not None:
            response.close()
    return False
