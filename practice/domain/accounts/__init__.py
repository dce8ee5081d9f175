"""Accounts domain - registration, login, email verification and client profiles"""
