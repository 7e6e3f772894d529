"""
Exception types understood by the log formatter.
"""

from typing import Any


class SoapFault(Exception):
    """
    Legacy SOAP fault raised by SOAP client integrations.

    - faultstring: human readable fault description (the exception message)
    - faultcode: SOAP fault code (e.g. 'soap:Server'); optional
    - faultactor: URI of the node that caused the fault; optional
    - detail: application-specific detail, either a string or a structure
      (dict/list) that is rendered as JSON; optional
    - code: numeric error code, 0 when the service did not provide one
    """

    def __init__(self, faultstring: str, *, faultcode: str | None = None,
                 faultactor: str | None = None, detail: Any = None, code: int = 0):
        super().__init__(faultstring)
        self.faultstring = faultstring
        self.faultcode = faultcode
        self.faultactor = faultactor
        self.detail = detail
        self.code = code

    def __str__(self) -> str:
        return self.faultstring


__all__ = ["SoapFault"]
