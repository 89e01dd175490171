"""DaisyPass Meta information.
   DaisyPass derives vault keys from a master passphrase and encrypts stored secrets.
"""
__title__ = 'daisypass'
__description__ = (
   'DaisyPass derives vault keys from a master passphrase '
   'and encrypts stored secrets.'
)
__version__ = '0.1.0'
__copyright__ = 'Copyright (c) 2024 Avery Allison'
__author__ = 'Avery Allison'
__author_email__ = 'averymallison@proton.me'
__license__ = 'Apache-2.0'
__url__ = 'https://github.com/averyallison/daisypass'
