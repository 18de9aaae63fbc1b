"""auth/ -- Session and credential lifecycle package for CareerCompass.

Layer rule: auth/ imports only stdlib, third-party libraries, and core/.
Presentation code imports auth.context, not the other way around.
"""
