# Gunicorn configuration for the catalog admin API
# Run with: gunicorn -c gunicorn.conf.py catalog_admin.wsgi:app
import os

bind = os.environ.get('GUNICORN_BIND', '0.0.0.0:5000')

workers = int(os.environ.get('GUNICORN_WORKERS', '2'))
worker_class = 'sync'
threads = int(os.environ.get('GUNICORN_THREADS', '2'))
max_requests = 1000
max_requests_jitter = 50

# Image uploads go through multipart bodies; outbound calls use a 30s timeout
timeout = 60
graceful_timeout = 30
keepalive = 2

loglevel = os.environ.get('GUNICORN_LOG_LEVEL', 'info')
accesslog = '-'
errorlog = '-'
access_log_format = '%(h)s %(t)s "%(r)s" %(s)s %(b)s %(D)s'

proc_name = 'catalog-admin'
preload_app = True


def when_ready(server):
    server.log.info("Catalog admin ready. Spawning workers")


def post_fork(server, worker):
    server.log.info("Worker spawned (pid: %s)", worker.pid)
