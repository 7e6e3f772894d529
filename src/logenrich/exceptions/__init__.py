from .base import SoapFault

__all__ = ["SoapFault"]
