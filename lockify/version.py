"""Lockify Meta information.
   Lockify keeps per-environment .env secrets encrypted on the local machine.
"""
__title__ = 'lockify'
__description__ = (
   'Lockify securely manages your .env files and secrets '
   'in passphrase-protected local vaults.'
)
__version__ = '0.1.0'
__license__ = 'Apache-2.0'
