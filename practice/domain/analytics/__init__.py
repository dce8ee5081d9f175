"""Dashboard analytics"""
