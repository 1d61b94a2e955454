"""Registration Certificate OCR Post-Processing.

Turns detection probability maps and recognition logits from an external
model server into corrected document text and a typed field record for
Korean business-registration certificates.
"""
