"""Gunicorn configuration for the Lab Stock inventory service."""
import os

bind = os.getenv("GUNICORN_BIND", "0.0.0.0:3000")

# SQLite serializes writers anyway; keep the default small for bench PCs.
workers = int(os.getenv("GUNICORN_WORKERS", "2"))

accesslog = os.getenv("GUNICORN_ACCESS_LOGFILE", "-")
errorlog = os.getenv("GUNICORN_ERROR_LOGFILE", "-")

forwarded_allow_ips = os.getenv("GUNICORN_FORWARDED_ALLOW_IPS", "*")
