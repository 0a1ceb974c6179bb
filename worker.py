"""
RQ worker entry point — used by the worker process in Procfile.

Configures logging before jobs run so job logs carry the same format and
lead context fields as the web process.
"""
from rq import Worker

from leadtree.extensions import rq_connection
from leadtree.logging_config import configure_logging
from leadtree.services.dispatch import QUEUE_NAME


def main():
    configure_logging()
    worker = Worker([QUEUE_NAME], connection=rq_connection)
    worker.work()


if __name__ == '__main__':
    main()
