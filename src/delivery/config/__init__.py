from .config_loader import DeliveryConfig

__all__ = ["DeliveryConfig"]
