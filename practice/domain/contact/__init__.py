"""Contact form and admin inbox"""
