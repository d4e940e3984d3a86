"""
RBAC (Role-Based Access Control) application.

Provides multi-company access control with:
- Global user identity system
- Per-company role assignments
- Direct permission overrides where deny always wins
- Authorization summaries for administration screens
- Comprehensive audit logging
"""
