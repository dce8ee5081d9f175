"""Client appointments domain - booking, reschedule and cancellation"""
