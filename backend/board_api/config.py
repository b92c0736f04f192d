import logging
import os

from dotenv import load_dotenv

load_dotenv()


def get_contract_mode() -> str:
    """
    Unknown-field policy for the contract validator.

    'strict' (default) reports undeclared fields as violations;
    'lenient' drops them. Read at call time so it can be flipped per process.
    """
    mode = os.getenv('CONTRACT_MODE', 'strict').strip().lower()
    return 'lenient' if mode == 'lenient' else 'strict'


def get_api_version() -> str:
    """API version stamped into every envelope's meta.apiVersion."""
    return os.getenv('API_VERSION', 'v1')


class Config:
    CONTRACT_MODE = get_contract_mode()
    API_VERSION = get_api_version()
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()

    # Where `python -m board_api.contracts.export` writes the contract dump
    CONTRACT_EXPORT_PATH = os.getenv('CONTRACT_EXPORT_PATH', 'contracts.json')


def configure_logging(level: str = None) -> None:
    """Apply the process-wide logging format once at startup."""
    level_name = (level or Config.LOG_LEVEL).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format='%(asctime)s %(levelname)s [%(name)s] %(message)s',
    )
