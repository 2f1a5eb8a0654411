"""Infrastructure layer: policy factories and builders"""
