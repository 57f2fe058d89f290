from typing import List

from models.transaction import TransactionIntent

WELCOME = """Welcome to StarkFinder! 🚀

I can help you with:
1️⃣ Starknet Information - Just ask any question!
2️⃣ Transaction Processing - Connect wallet and describe what you want to do
3️⃣ Token Balances - Check your token balances

Commands:
`/wallet <private_key>` - Connect your wallet
`/balance [token_address]` - Check token balance
`/txn <description>` - Create a transaction
/help - Show detailed help

Just type naturally - no need to use commands for every interaction!"""

HELP = """StarkFinder Bot Guide 📚

🔍 Information Mode:
• Ask any question about Starknet
• Example: "How do accounts work?"
• Example: "What is Cairo?"

💰 Transaction Mode:
• First connect wallet in a private chat: `/wallet <private_key>`
• Then describe your transaction
• Example: "Swap 100 ETH for USDC"
• Example: "Send 50 USDC to 0x..."
• Review the preview and reply with "{keyword}" to execute

💳 Wallet Commands:
• `/wallet <private_key> [account_address]` - Connect wallet
• `/balance [token_address]` - Check balance
• `/txn <description>` - Create transaction

⚙️ Features:
• Natural language processing
• Transaction preview
• Gas estimation
• Balance checking

Need more help? Join our support group!"""

TXN_MINI_APP = """🚀 Transaction Processing via Mini App 📱

To create and execute transactions, please use our Telegram Mini App: [AppLink]({url})

🔗 Open StarkFinder Mini App
- Tap the button in the chat or visit @starkfinderbot
- Navigate to the Transactions section
- Follow the guided transaction flow

Benefits of Mini App:
✅ Secure transaction preview
✅ Real-time gas estimation
✅ Multi-step transaction support
✅ User-friendly interface

Need help? Contact our support team!"""

INVALID_COMMAND = 'Invalid command. Type /help for available commands.'
CONNECT_WALLET_FIRST = 'Please connect your wallet first using `/wallet <private_key>`'
WALLET_KEY_REQUIRED = 'Please provide your private key to connect wallet.'
WALLET_PRIVATE_CHAT_ONLY = 'For your safety, connect your wallet in a private chat with me, never in a group.'
WALLET_INVALID = 'Invalid private key or connection error. Please try again.'
WALLET_CONNECTED = '✅ Wallet connected!\nAddress: {address}\n\nYou can now execute transactions and check balances.'

BALANCE_RESULT = 'Balance: {amount} {symbol}'
BALANCE_FAILED = 'Error getting token balance. Please try again.'

KNOWLEDGE_UNAVAILABLE = 'Sorry, I am unable to process your request at the moment.'

EXTRACTION_FAILED = 'Failed to process transaction request. Please try again.'
PENDING_REPLACED = 'ℹ️ Your previous pending transaction was replaced by this one.'
EXECUTION_IN_PROGRESS = '⏳ A transaction is already being executed. Please wait for it to finish.'
EXECUTION_FAILED = 'Transaction failed. Please try again.'
PENDING_EXPIRED = 'This transaction preview has expired. Please describe your transaction again.'
CONFIRMATION_CODE_REQUIRED = 'Please reply with "{keyword} {code}" to execute the pending transaction.'
CONFIRMATION_CODE_MISMATCH = 'That confirmation code does not match the pending transaction. Nothing was executed.'

GENERIC_ERROR = 'An error occurred. Please try again.'


def render_preview(intent: TransactionIntent, keyword: str, require_code: bool = False) -> str:
    lines: List[str] = [
        'Transaction Preview:',
        f'Type: {intent.action}',
    ]

    if intent.from_asset:
        lines.append(f'From: {intent.from_amount or "Unknown"} {intent.from_asset}')

    if intent.to_asset:
        lines.append(f'To: {intent.to_amount or "Unknown"} {intent.to_asset}')

    if intent.receiver:
        lines.append(f'Receiver: {intent.receiver}')

    lines.append(f'Estimated Gas: {intent.estimated_cost_usd or "Unknown"} USD')
    lines.append('')

    if require_code:
        lines.append(f'Reply with "{keyword} {intent.confirmation_code}" to execute this transaction.')
    else:
        lines.append(
            f'Reply with "{keyword}" to execute this transaction '
            f'(confirmation code: {intent.confirmation_code}).'
        )

    return '\n'.join(lines)


def render_execution_result(transaction_hash: str, explorer_tx_url: str) -> str:
    return (
        'Transaction Executed! 🎉\n'
        f'Hash: {transaction_hash}\n'
        f'View on Starkscan: {explorer_tx_url}{transaction_hash}'
    )
