# The smallest unit of CKB is the shannon: 1 CKByte = 10^8 shannons.
shannon = 1
ckbytes = 100000000
