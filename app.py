#!/usr/bin/env python3
"""
Print Dispatch - CloudPRNT-style print job server
Queues receipt content per printer and serves it to polling printers
"""

import os

from print_dispatch import create_app

app = create_app()


if __name__ == '__main__':
    host = os.environ.get('PRINTDISPATCH_HOST', '0.0.0.0')
    port = int(os.environ.get('PRINTDISPATCH_PORT', 5000))
    app.logger.info(f"Starting Print Dispatch on http://{host}:{port}")
    app.logger.info("Printers poll POST/GET /printers/<printer_id>/job")
    app.logger.info("Press Ctrl+C to stop the server")
    app.run(host=host, port=port, debug=False)
