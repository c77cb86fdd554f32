from .service import TransferReceipt, TransferService

__all__ = ["TransferReceipt", "TransferService"]
