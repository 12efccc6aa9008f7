"""WSGI entry point. Starts the background task sweep alongside the app."""

from storefront import create_app
from storefront.services.tasks import task_scheduler

app = create_app()

if app.config['SCHEDULER_ENABLED']:
    task_scheduler.start()


if __name__ == '__main__':
    app.run(use_reloader=False)
