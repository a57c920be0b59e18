"""Pure domain types: errors, outcomes and the operation schema."""
