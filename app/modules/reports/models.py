# Reports are computed on request from existing tables and are not stored.
# Each generated report is recorded in audit_logs with entity_type REPORT.
