"""
Print-job dispatch subsystem.

- codec: control-code detection and reversible base64 encoding of payloads
- categories: category ordering table used by the receipt composer
- receipt: receipt composition into ESC/POS command streams
- jobs: PrintJob model, JobStore interface, in-memory store
- service: enqueue service (producer entry point)
- poll: CloudPRNT-style availability check and content fetch

Common names are re-exported for convenience.
"""

from .categories import *
from .codec import *
from .errors import *
from .jobs import *
from .poll import *
from .receipt import *
from .service import *
