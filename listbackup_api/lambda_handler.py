"""AWS Lambda entry point.

Mangum translates API Gateway events into ASGI and exposes the raw event as
``scope["aws.event"]``, which is where the authorizer context is read from.
Lifespan is off under Lambda, so logging is configured at cold start.
"""

from mangum import Mangum

from listbackup_api.logging.audit import setup_logging
from listbackup_api.main import app

setup_logging()

handler = Mangum(app, lifespan="off")
