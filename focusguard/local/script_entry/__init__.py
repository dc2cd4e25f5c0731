"""
Entry points for the two background loops, run by launchd through the
generated launcher scripts (`python -m focusguard.local.script_entry.<name>`).
"""
