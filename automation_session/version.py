"""Automation Session Meta information.
   Automation Session keeps the secrets and stashed files of a single
   script run, and removes them when the run ends.
"""
__title__ = 'automation_session'
__description__ = (
   'Automation Session keeps the secrets and stashed files of a single '
   'script run, and removes them when the run ends.'
)
__version__ = '0.3.0'
__copyright__ = 'Copyright (c) 2023 Jesus Lara'
__author__ = 'Jesus Lara'
__author_email__ = 'jesuslarag@gmail.com'
__license__ = 'Apache-2.0'
__url__ = 'https://github.com/phenobarbital/automation-session'
