"""Unit tests - services, policy and record stores"""
