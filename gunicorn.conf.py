# gunicorn.conf.py
import os

# Worker configuration
# Presence, typing state and the Socket.IO server live in process memory,
# so the chat runs in a single worker and scales with threads.
workers = 1
worker_class = "gthread"
threads = int(os.getenv("GUNICORN_THREADS", 16))
timeout = int(os.getenv("GUNICORN_TIMEOUT", 120))
keepalive = 2

# Logging
accesslog = "-"
errorlog = "-"
loglevel = os.getenv("GUNICORN_LOG_LEVEL", "info")

# Process naming
proc_name = "community-chat"

# Bind address
bind = os.getenv("GUNICORN_BIND", "0.0.0.0:8000")

# Security headers (if behind proxy)
forwarded_allow_ips = "*"
