"""
payroll_modules -- business modules built on the payroll engines.

Each subpackage is thin glue: boundary validation of store documents, a
service facade that delegates to ``payroll_engines``, result models, and
export helpers.
"""
