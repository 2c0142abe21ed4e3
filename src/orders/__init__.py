"""
Order model and the order-manager collaborator.

The matching engine only reads orders and reports status changes back; order
storage, lookup and creation-time validation live here.
"""
