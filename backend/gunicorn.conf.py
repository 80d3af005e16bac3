# gunicorn.conf.py
# Gunicorn configuration file

import logging
import os

bind = f"0.0.0.0:{os.environ.get('PORT', '5001')}"

# Logging
accesslog = '-'  # Log to stdout
errorlog = '-'   # Log to stderr
loglevel = 'info'

# Worker configuration
# Enrichment streams stay open for the whole playlist (pacing delay x tracks),
# so threaded workers keep one stream from blocking every other request.
workers = int(os.environ.get('WEB_CONCURRENCY', 1))
worker_class = 'gthread'
threads = int(os.environ.get('GUNICORN_THREADS', 8))
timeout = 600

# Server mechanics
daemon = False
pidfile = None
umask = 0
user = None
group = None
tmp_upload_dir = None


# Hooks
def on_starting(server):
    """
    Called just before the master process is initialized.
    Reports configuration problems before any request arrives.
    """
    logger = logging.getLogger(__name__)

    from dotenv import load_dotenv
    load_dotenv()
    from config import ConfigurationError, Settings

    try:
        Settings.from_env().validate()
        logger.info("Configuration validated")
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e} - enrichment requests will fail until it is fixed")


def worker_exit(server, worker):
    """
    Called when a worker exits.
    """
    logger = logging.getLogger(__name__)
    logger.info(f"Worker {worker.pid} exiting")
