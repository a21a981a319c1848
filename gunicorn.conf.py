import os

# Customization sessions live in process memory, so a single worker keeps a
# shopper's uploads and selections on the process that owns them.
workers = 1
threads = int(os.environ.get("GUNICORN_THREADS", "4"))

# Bind
bind = os.environ.get("GUNICORN_BIND", "0.0.0.0:5000")

# Logging
accesslog = "-"
errorlog = "-"
loglevel = "info"

# Timeout (uploads up to 10MB are transcoded in-request)
timeout = 60
