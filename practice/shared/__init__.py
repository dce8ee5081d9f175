"""Shared validation and request-parsing helpers"""
