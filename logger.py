import logging
import logging.config
import os


def get_logging_config(level: str | None = None, log_dir: str | None = None) -> dict:
    level = (level or os.getenv('LOG_LEVEL', 'INFO')).upper()
    log_dir = log_dir or os.getenv('LOG_DIR')
    handlers = {
        'console': {
            'class': 'logging.StreamHandler',
            'stream': 'ext://sys.stdout',
            'formatter': 'default',
        },
    }
    root_handlers = ['console']
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        handlers['file'] = {
            'class': 'logging.FileHandler',
            'filename': os.path.join(log_dir, 'finance.log'),
            'formatter': 'default',
        }
        root_handlers.append('file')

    return {
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'default': {
                'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            },
        },
        'handlers': handlers,
        'loggers': {
            '': {
                'handlers': root_handlers,
                'level': level,
            },
            # SQL echo stays off unless asked for explicitly
            'sqlalchemy.engine': {
                'handlers': root_handlers,
                'level': 'WARNING',
                'propagate': False,
            },
            'werkzeug': {
                'handlers': root_handlers,
                'level': 'INFO',
                'propagate': False,
            },
        },
    }

def setup_logging(level: str | None = None, log_dir: str | None = None) -> None:
    logging.config.dictConfig(get_logging_config(level, log_dir))

def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
