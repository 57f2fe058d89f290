import os
from typing import List, Optional
from dotenv import load_dotenv

load_dotenv()


def _split_words(value: str) -> List[str]:
    return [word.strip().lower() for word in value.split(',') if word.strip()]


class Settings:
    TELEGRAM_BOT_TOKEN: str = os.getenv('TELEGRAM_BOT_TOKEN', '')

    WEBHOOK_URL: Optional[str] = os.getenv('WEBHOOK_URL')
    WEBHOOK_LISTEN: str = os.getenv('WEBHOOK_LISTEN', '0.0.0.0')
    WEBHOOK_PORT: int = int(os.getenv('WEBHOOK_PORT', '8443'))
    WEBHOOK_SECRET_TOKEN: Optional[str] = os.getenv('WEBHOOK_SECRET_TOKEN')

    BRIAN_API_KEY: str = os.getenv('BRIAN_API_KEY', '')
    BRIAN_API_BASE_URL: str = os.getenv('BRIAN_API_BASE_URL', 'https://api.brianknows.org/api/v0/agent')
    BRIAN_KNOWLEDGE_BASE: str = os.getenv('BRIAN_KNOWLEDGE_BASE', 'starknet_kb')

    STARKNET_RPC_URL: str = os.getenv('STARKNET_RPC_URL', 'https://starknet-mainnet.public.blastapi.io')
    STARKNET_CHAIN_ID: str = os.getenv('STARKNET_CHAIN_ID', '4012')
    # Chain the signer targets: MAINNET or SEPOLIA
    STARKNET_SIGNING_CHAIN: str = os.getenv('STARKNET_SIGNING_CHAIN', 'MAINNET').strip().upper()
    ETH_TOKEN_ADDRESS: str = os.getenv(
        'ETH_TOKEN_ADDRESS',
        '0x049d36570d4e46f48e99674bd3fcc84644ddd6b96f7c741b1562b82f9e004dc7'
    )
    # OpenZeppelin account v0.8.1
    ACCOUNT_CLASS_HASH: str = os.getenv(
        'ACCOUNT_CLASS_HASH',
        '0x061dac032f228abef9c6626f995015233097ae253a7f72d68552db02f2971b8f'
    )

    EXPLORER_TX_URL: str = os.getenv('EXPLORER_TX_URL', 'https://starkscan.co/tx/')
    MINI_APP_URL: str = os.getenv('MINI_APP_URL', 'https://t.me/starkfinder_bot/strk00')

    CONFIRMATION_KEYWORD: str = os.getenv('CONFIRMATION_KEYWORD', 'confirm').strip().lower()
    TRANSACTION_TRIGGER_WORDS: List[str] = _split_words(
        os.getenv('TRANSACTION_TRIGGER_WORDS', 'swap,transfer,send')
    )

    SESSION_TIMEOUT_SECONDS: float = float(os.getenv('SESSION_TIMEOUT_SECONDS', '1800'))
    SESSION_SWEEP_INTERVAL_SECONDS: float = float(os.getenv('SESSION_SWEEP_INTERVAL_SECONDS', '300'))

    HTTP_TIMEOUT_SECONDS: float = float(os.getenv('HTTP_TIMEOUT_SECONDS', '30'))
    TX_CONFIRMATION_TIMEOUT_SECONDS: float = float(os.getenv('TX_CONFIRMATION_TIMEOUT_SECONDS', '180'))

    def validate(self) -> bool:
        required_fields = [
            'TELEGRAM_BOT_TOKEN',
            'BRIAN_API_KEY',
            'STARKNET_RPC_URL',
        ]

        missing_fields = [field for field in required_fields if not getattr(self, field)]

        if missing_fields:
            print(f"⚠️ Missing required environment variables: {', '.join(missing_fields)}")
            return False

        if not self.CONFIRMATION_KEYWORD or not self.TRANSACTION_TRIGGER_WORDS:
            print("⚠️ CONFIRMATION_KEYWORD and TRANSACTION_TRIGGER_WORDS must not be empty.")
            return False

        if self.STARKNET_SIGNING_CHAIN not in ('MAINNET', 'SEPOLIA'):
            print(f"⚠️ Unsupported STARKNET_SIGNING_CHAIN: {self.STARKNET_SIGNING_CHAIN}")
            return False

        return True


settings = Settings()
