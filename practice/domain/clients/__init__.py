"""Admin client directory"""
