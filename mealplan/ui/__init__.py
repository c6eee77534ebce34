"""Calendar UI model: serializable state, pure transitions and the HTTP-backed controller."""
