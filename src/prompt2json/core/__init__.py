"""Core data types shared by the prompt2json stages."""
