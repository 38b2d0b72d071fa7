"""imorch — switches the input method on modal-editor and math-region transitions."""
