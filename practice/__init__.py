"""Counseling practice booking API"""
