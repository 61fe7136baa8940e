import logging

import config
from utils.logging_config import setup_logging

# Initialize centralized logging configuration
setup_logging()

from utils.config_validator import validate_or_exit
from server import main

if __name__ == '__main__':
    # Validate critical configuration before the server starts
    validate_or_exit(config)
    logging.info("[run.py] Starting storefront API")
    main()
