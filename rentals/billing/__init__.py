# rentals/billing/__init__.py
# Billing core: calculator and lifecycle are pure; status, invoices,
# auto_invoice and ledger work against the database session.
