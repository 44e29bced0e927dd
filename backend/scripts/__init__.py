"""
Backend Scripts Module

This module contains utility scripts for record store maintenance.

Available scripts:
    - seed_data.py: Creates sample accounts and approvals for testing
    - check_admins.py: Lists administrators and pending signups

Usage:
    python -m scripts.seed_data
    python -m scripts.check_admins
"""
