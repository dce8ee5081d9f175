"""Business domains - one package per area of the practice"""
