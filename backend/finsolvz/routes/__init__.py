"""
HTTP route modules. Handlers are thin: decode, call one service method,
shape the envelope. Authorization is declared per route through
`require_role(action)`.
"""
