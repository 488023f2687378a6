"""Binary .pack container: constants, errors, table reader/writer, codec."""
