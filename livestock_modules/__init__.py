"""
livestock_modules -- read-side modules built on the kernel and engines.

Modules here never write.  Each one loads DTO snapshots through kernel
selectors and hands them to pure functions.
"""
