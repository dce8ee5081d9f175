"""Services catalog domain"""
