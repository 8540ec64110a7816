"""SecureVault Meta information.
   SecureVault keeps secret values in the OS credential store and their
   descriptive metadata in a local JSON file.
"""
__title__ = 'securevault'
__description__ = (
   'Local secret manager backed by the OS keychain '
   'with crash-safe metadata persistence.'
)
__version__ = '0.3.0'
__license__ = 'Apache-2.0'
