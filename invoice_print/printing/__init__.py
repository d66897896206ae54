"""Print dispatch to local OS printers and the cloud print API."""

from .cloud import CloudPrintClient
from .dispatcher import PrintDispatcher
from .local import LocalPrinter

__all__ = ["CloudPrintClient", "LocalPrinter", "PrintDispatcher"]
