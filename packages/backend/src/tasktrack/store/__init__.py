"""Persistence layer.

Learn: Stores own every SQL statement. Services never build queries; they
call a store method with the owner/principal id they got from the request
context. Stores commit their own writes and translate integrity failures
into ValidationError; they never log and never swallow errors.
"""
