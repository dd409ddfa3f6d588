# devsetup/__init__.py
# -*- coding: utf-8 -*-
"""
Provisioning orchestrator for a personal development environment.
"""

__version__ = "0.1.0"
