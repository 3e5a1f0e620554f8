import logging

log = logging.getLogger("invoices")
