"""
Gunicorn settings for the Ramadan tracker API.

Env overrides:
  PORT       listen port (default 8000)
  WORKERS    worker processes (default: one per CPU, at least 2)
  LOG_LEVEL  gunicorn log level (default info)

Report handlers are synchronous and spend their time in the database, and
each worker holds its own SQLAlchemy pool (5 + 10 overflow). Keep
WORKERS x 15 below the database's max_connections. Submissions for one
user are serialized by the row lock in services/reports.py, whichever
worker takes them.
"""
import multiprocessing
import os

bind = f"0.0.0.0:{os.environ.get('PORT', '8000')}"

workers = int(os.environ.get("WORKERS", max(2, multiprocessing.cpu_count())))
worker_class = "uvicorn.workers.UvicornWorker"

# A submission is one short transaction; anything slower is stuck on a lock.
timeout = 30
graceful_timeout = 20
keepalive = 5

# Recycle workers now and then so per-process pools start fresh.
max_requests = 2000
max_requests_jitter = 200

loglevel = os.environ.get("LOG_LEVEL", "info").lower()
accesslog = "-"
errorlog = "-"
access_log_format = '%(h)s "%(r)s" %(s)s %(L)ss'
