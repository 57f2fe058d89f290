from .brian_service import BrianService
from .starknet_service import StarknetService
from .telegram_service import TelegramSender

__all__ = ['BrianService', 'StarknetService', 'TelegramSender']
