"""Admin appointments domain - dashboard listing, calendar, conflicts and manual changes"""
