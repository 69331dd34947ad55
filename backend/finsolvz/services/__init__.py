"""
Finsolvz Backend — Services Package
====================================

Business rules on top of the repositories:
    - auth_service.py:        login, forgot-password, reset-password
    - user_service.py:        registration, profile/role updates, password change
    - company_service.py:     company CRUD, name dispatch, cached listing
    - report_type_service.py: report-type CRUD, cached listing
    - report_service.py:      report CRUD and filtered populated reads
    - email_service.py:       SMTP delivery of password-reset mail

Services are constructed per request by `finsolvz.dependencies` from the
request's database handle and the process-wide cache.
"""
