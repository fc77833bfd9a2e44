"""
HomeCare Pro: record access backend for home-care clinics

Serves prescriptions, lab requests and results, and patient notes to patients
and clinical staff, resolving every identifier a patient's records may have
been filed under.
"""

__version__ = "2.0.0"
__author__ = "HomeCare Pro Team"
__description__ = "Clinical record access API for home-care clinics"
